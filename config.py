import json
import os

CONFIG_FILE = 'config.json' # Optional overrides, read from the working directory

HOST = '0.0.0.0' # Server game address
PORT = 55555 # Server game port
BACKLOG = 2 # Only two players are ever accepted
FORMAT = 'utf-8' # Messages format
LOG_FILE = 'server.log' # Log file of the server
STATUS_ENABLED = True # Serve the status page
STATUS_HOST = '0.0.0.0' # Status page address
STATUS_PORT = 5000 # Status page port
CERTFILE = None # TLS certificate, plain TCP when unset
KEYFILE = None # TLS key, plain TCP when unset

DEFAULTS = {
    'host': HOST,
    'port': PORT,
    'backlog': BACKLOG,
    'log_file': LOG_FILE,
    'status_enabled': STATUS_ENABLED,
    'status_host': STATUS_HOST,
    'status_port': STATUS_PORT,
    'certfile': CERTFILE,
    'keyfile': KEYFILE,
}

def load_config(config_path=CONFIG_FILE):
    # Defaults updated with the values found in config.json. A broken file stops the server.
    config = dict(DEFAULTS)
    if not os.path.exists(config_path):
        return config
    with open(config_path, 'r') as file:
        try:
            overrides = json.load(file)
        except json.JSONDecodeError as e:
            raise ValueError(f"Could not parse config file {config_path}: {e}") from e
    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {config_path} must hold a JSON object")
    unknown = sorted(set(overrides) - set(DEFAULTS))
    if unknown:
        raise ValueError(f"Unknown config keys in {config_path}: {', '.join(unknown)}")
    for key, value in overrides.items():
        check_type(key, value, config_path)
    config.update(overrides)
    return config

def check_type(key, value, config_path):
    # Overrides keep the type of their default, TLS files may also be null
    default = DEFAULTS[key]
    if default is None:
        valid = value is None or isinstance(value, str)
        expected = 'str or null'
    else:
        # bool is an int subclass, so types are compared exactly
        valid = type(value) is type(default)
        expected = type(default).__name__
    if not valid:
        raise ValueError(f"Config key {key!r} in {config_path} must be {expected}, got {value!r}")
