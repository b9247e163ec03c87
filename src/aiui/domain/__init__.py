"""Pure rules: the manifest model, input constraints, goal resolution, traces.

Nothing here reads files or settings; callers hand in parsed documents
and values.  Imports stay within the stdlib and pydantic.
"""
