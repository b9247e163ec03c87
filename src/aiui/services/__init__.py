"""Service layer: operations over a Site, each returning a ServiceResult."""
