"""Infrastructure layer: manifest files, binding adapters, site wiring."""
