"""Shared constants for forumops."""

# Default ports of the monitoring stack published by docker-compose.monitoring.yml
APP_PORT = 3000
PROMETHEUS_PORT = 9090
ALERTMANAGER_PORT = 9093
GRAFANA_PORT = 3001

DEFAULT_COMPOSE_FILE = "docker-compose.monitoring.yml"

# Backups are named monitoring-backup-YYYYmmdd-HHMMSS.tar.gz
BACKUP_PREFIX = "monitoring-backup-"
BACKUP_SUFFIX = ".tar.gz"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
DEFAULT_BACKUP_DIR = "./backups"
