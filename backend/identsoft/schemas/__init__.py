# Request DTOs and response serialization
