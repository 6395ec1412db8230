"""
Entry point of `etherpad-sync` CLI when invoked as
`python -m etherpad_sync.tools.cli`.
"""
from .main import app

app()
