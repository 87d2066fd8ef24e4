"""Read-only lookup tables: game catalogue and city gazetteer."""
