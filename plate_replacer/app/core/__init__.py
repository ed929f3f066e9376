"""Cross-cutting helpers shared by every layer."""
SERVICE_NAME = "plate_replacer"
