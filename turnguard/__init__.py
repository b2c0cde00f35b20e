"""
turnguard - tool call / tool result adjacency validation and repair for chat transcripts
"""

__version__ = "0.1.0"
