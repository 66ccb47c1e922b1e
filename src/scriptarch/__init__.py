"""Script Architect - turn short videos into scene-by-scene scripts with AI."""

__version__ = "0.1.0"
