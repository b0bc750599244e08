"""Local browser UI: service layer and FastAPI server."""
