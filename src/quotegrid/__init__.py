"""quotegrid -- quotation collection with a spreadsheet grid view."""

__version__ = "0.1.0"
