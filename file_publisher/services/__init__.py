# Shared services
