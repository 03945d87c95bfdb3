import secrets

def generate_unique_id(num_bytes=16):
  """Random connection id, rendered as lowercase hex (32 chars by default)."""
  return secrets.token_hex(num_bytes)
