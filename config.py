# Main utility configuration
PROGRAM_VERSION = "MAX40080 Utility 1.0"

# Bus defaults (used when neither --board nor the explicit flags are given)
DEFAULT_I2C_CONTROLLER = 1       # /dev/i2c-1
DEFAULT_I2C_ADDRESS = 0x21
DEFAULT_SHUNT_RESISTOR = 0.010   # ohms

# Acquisition
DEFAULT_SAMPLE_COUNT = 1
UNBOUNDED_SAMPLE_COUNT = -1
SAMPLE_RETRY_LIMIT = 1000        # Read attempts per logical sample
ALL_INTERRUPTS = 0xFF            # OR over every interrupt flag

# Logging
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(levelname)s: %(message)s"
