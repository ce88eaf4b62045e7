"""Active expedition crews from Launch Library, flattened and counted per station."""
