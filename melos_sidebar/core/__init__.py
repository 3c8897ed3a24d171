"""Core domain: parsing, resolution, writing and presentation of Melos scripts."""
