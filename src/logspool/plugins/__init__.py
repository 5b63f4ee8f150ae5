"""
Collaborator plugins: formatters render events, sinks store batches.
"""
