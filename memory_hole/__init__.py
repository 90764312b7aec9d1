"""Data-access and transactional layer of the memory-hole support service."""
