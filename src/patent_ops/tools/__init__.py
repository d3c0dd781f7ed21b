"""OPS API tools: client and response normalizers."""
