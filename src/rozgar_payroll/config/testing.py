SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

STORE_BACKEND = "memory"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "rozgar_test",
}

AUTO_INIT_DB = False

GATEWAY_TIMEOUT_SECONDS = 2.0

RAZORPAY_RELAY_URL = "http://relay.test"

PHONEPE_MERCHANT_ID = "TESTMERCHANT"
PHONEPE_SALT_KEY = "test-salt"
PHONEPE_SALT_INDEX = 1
PHONEPE_BASE_URL = "http://phonepe.test"
PHONEPE_REDIRECT_URL = "http://app.test/payment-callback"
PHONEPE_CALLBACK_URL = ""

NOTIFIER = "log"
