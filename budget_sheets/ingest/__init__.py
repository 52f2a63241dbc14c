"""File-backed sheet access: read grids from CSV/XLSX and append rows to CSV."""
