"""
AWS Lambda handler for the Redline Rule Engine API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import json
import logging
import os
from datetime import date

from redline import DashboardReporter, DealPricer
from redline.resolver import suggest_priority_for

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Environment (dev, staging, prod)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Initialize engine entry points (reused across warm invocations)
pricer = DealPricer()
reporter = DashboardReporter()

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

# POST routes: path -> (handler, fill in today's as_of when missing)
POST_ROUTES = {
    "/resolve": (pricer.resolve_from_dict, True),
    "/price_deal": (pricer.process_from_dict, True),
    "/validate_rule": (pricer.validate_rule_from_dict, False),
    "/suggest_priority": (lambda data: {"priority": suggest_priority_for(data)}, False),
    "/deal_financials": (reporter.deal_financials_from_dict, False),
    "/pipeline_stats": (reporter.pipeline_stats_from_dict, False),
    "/aging": (reporter.aging_from_dict, True),
    "/advances": (reporter.advances_from_dict, False),
}


def _response(status_code, body):
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(body)}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health, GET /api
    - POST routes listed in POST_ROUTES
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    # Route to appropriate handler
    if path == "/health" and http_method == "GET":
        return handle_health()
    elif path == "/api" and http_method == "GET":
        return handle_api_info()
    elif path in POST_ROUTES and http_method == "POST":
        handler, default_today = POST_ROUTES[path]
        return handle_post(event, path, handler, default_today)
    else:
        return _response(404, {"error": "Not found", "path": path})


def handle_health():
    """Health check endpoint."""
    return _response(200, {"status": "healthy", "environment": ENVIRONMENT})


def handle_api_info():
    """API information endpoint."""
    return _response(
        200,
        {
            "status": "ok",
            "message": "Redline Pricing & Commission Rule API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "runtime": "AWS Lambda",
            "endpoints": {path.lstrip("/"): f"{path} [POST]" for path in POST_ROUTES} | {"health": "/health [GET]"},
        },
    )


def handle_post(event, path, handler, default_today=False):
    """Parse the request body and run it through the engine."""
    try:
        # Parse request body
        body = event.get("body", "")
        if isinstance(body, str):
            if not body:
                return _response(400, {"error": "No input data provided", "status": "failed"})
            # Handle base64 encoded body (API Gateway)
            if event.get("isBase64Encoded"):
                body = base64.b64decode(body).decode("utf-8")
            input_data = json.loads(body)
        else:
            input_data = body

        if not isinstance(input_data, dict) or not input_data:
            return _response(400, {"error": "No input data provided", "status": "failed"})

        # The HTTP boundary is the only place "today" is filled in
        if default_today and not input_data.get("as_of"):
            input_data["as_of"] = date.today().isoformat()

        logger.info(f"Processing {path} request")

        result = handler(input_data)

        logger.info(f"{path} request processed successfully")

        return _response(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine (missing fields, invalid types, etc.)
        logger.error(f"Validation error: {str(e)}")
        return _response(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})
