"""Entry point for running paperpilot as a module or installed script.

Usage:
    paperpilot / python -m paperpilot         → GUI (uvicorn)
    paperpilot <command> ... / python -m paperpilot <command> ... → CLI
"""

import sys

import uvicorn


def run() -> None:
    """Entry point: no args → GUI (via uvicorn), else → CLI."""
    if len(sys.argv) == 1:
        uvicorn.run("paperpilot.gui.app:app", host="127.0.0.1", port=8000, reload=True)
    else:
        from paperpilot.cli import run_cli
        run_cli()


if __name__ == "__main__":
    run()
