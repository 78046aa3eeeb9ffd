"""BLS OE flat-file parsing, validation, loading and API access"""
