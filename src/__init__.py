from pathlib import Path

# src/ is the package root; PROJECT_ROOT is one directory above it.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
