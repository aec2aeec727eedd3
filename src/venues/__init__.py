"""
Remote sources of directory data.

Holds the HTTP client that downloads the WWFF directory and hands raw bytes to
the decoder.
"""
