"""FastAPI GUI for PaperPilot."""
