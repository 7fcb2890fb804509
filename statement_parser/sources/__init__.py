"""
Per-source statement pipelines. Each module exposes `SOURCE_ID` and
`parse_statement(statement)`.
"""
