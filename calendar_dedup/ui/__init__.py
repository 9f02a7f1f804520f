"""tkinter front end for Calendar Dedup."""
