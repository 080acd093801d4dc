"""Board persistence for the ordering core.

This package provides the task model, the file-backed store and the engine
that applies drag-and-drop mutations to the board.
"""
