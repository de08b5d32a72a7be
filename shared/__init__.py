"""Building blocks shared by the portal apps: events, unit of work, errors."""
