"""MultiBucket - presigned URLs across several object storage providers."""
