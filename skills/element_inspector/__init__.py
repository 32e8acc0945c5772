"""Element inspector skill: layout debugging for rendered pages over CDP."""
