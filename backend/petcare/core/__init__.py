# Core package: configuration, errors, logging, security and request helpers
