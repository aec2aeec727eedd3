"""
WWFF directory parsing: field parsers, record schema, decoder and CSV I/O.

Turns the directory CSV into validated WwffRecord values, with a ParseError
per malformed row carrying its row number and reason.
"""
