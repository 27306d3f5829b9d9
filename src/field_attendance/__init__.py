"""Field attendance package.

Organized by feature modules (attendance, images, geocoding, replication,
client, ...) with a thin Flask controller layer over service/repository layers.
"""
