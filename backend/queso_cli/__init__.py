"""Queso development CLI (``queso dev start|stop|setup|clean``)."""
