"""
Configuration settings for the statsd exporter.
"""
import os

# Statsd server configuration
STATSD_HOST = os.getenv('STATSD_HOST', '127.0.0.1')
STATSD_PORT = int(os.getenv('STATSD_PORT', '8125'))
FLUSH_INTERVAL = int(os.getenv('STATSD_FLUSH_INTERVAL', '1000'))  # milliseconds
DEBUG = os.getenv('STATSD_DEBUG', '').lower() in ('1', 'true', 'yes')

# Metric naming
PREFIX = os.getenv('STATSD_PREFIX', '')
SUFFIX = os.getenv('STATSD_SUFFIX', '')

# ekg JSON endpoint configuration
EKG_URL = os.getenv('EKG_URL', 'http://localhost:8000/')
EKG_REQUEST_TIMEOUT = float(os.getenv('EKG_REQUEST_TIMEOUT', '5'))  # seconds
EKG_MAX_ATTEMPTS = int(os.getenv('EKG_MAX_ATTEMPTS', '3'))
EKG_RETRY_DELAY = int(os.getenv('EKG_RETRY_DELAY', '200'))  # milliseconds

# Logging configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
