"""
Melos Sidebar — script registry and recommendations for Melos workspaces.
"""

__version__ = "0.1.0"
