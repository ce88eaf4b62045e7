"""Product catalog with stock bookkeeping and an expedition crew client."""
