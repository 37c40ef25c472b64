"""
Service layer: provider selection, URL signing and configuration watching.
"""
