from pages_utils.logger import log
from pages_utils.status import status_response


def lambda_handler(event, context):
    log("health.check", path="/health", method=event.get("requestContext", {}).get("http", {}).get("method", "GET"))
    return status_response()
