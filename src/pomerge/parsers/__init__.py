"""PO file readers: a line scanner for merging and a polib parser for statistics."""
