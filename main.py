from datetime import date

from flask import Flask, request, jsonify
from flask_cors import CORS
from redline import DealPricer, DashboardReporter
from redline.resolver import suggest_priority_for
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (the sales portal calls the API from the browser)
CORS(app)

# Initialize the engine entry points
pricer = DealPricer()
reporter = DashboardReporter()


def _with_as_of(input_data):
    # The HTTP boundary is the only place "today" is filled in
    if not input_data.get("as_of"):
        input_data = {**input_data, "as_of": date.today().isoformat()}
    return input_data


def _run(label, handler, default_today=False):
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        if default_today:
            input_data = _with_as_of(input_data)

        logger.info(f"Processing {label} request")

        result = handler(input_data)

        logger.info(f"{label} request processed successfully")

        return jsonify(result), 200

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "failed"
        }), 500


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Redline Pricing & Commission Rule API",
        "version": "1.0",
        "endpoints": {
            "resolve": "/resolve [POST]",
            "price_deal": "/price_deal [POST]",
            "validate_rule": "/validate_rule [POST]",
            "suggest_priority": "/suggest_priority [POST]",
            "deal_financials": "/deal_financials [POST]",
            "pipeline_stats": "/pipeline_stats [POST]",
            "aging": "/aging [POST]",
            "advances": "/advances [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


@app.route("/resolve", methods=["POST"])
def resolve():
    """Resolve the pricing and commission rule for a deal"""
    return _run("resolve", pricer.resolve_from_dict, default_today=True)


@app.route("/price_deal", methods=["POST"])
def price_deal():
    """Resolve rules and build the pricing snapshot for a deal"""
    return _run("price_deal", pricer.process_from_dict, default_today=True)


@app.route("/validate_rule", methods=["POST"])
def validate_rule():
    """Validate a pricing or commission rule before it is saved"""
    return _run("validate_rule", pricer.validate_rule_from_dict)


@app.route("/suggest_priority", methods=["POST"])
def suggest_priority():
    """Suggest a priority from the filled scope fields of a rule form"""
    return _run("suggest_priority", lambda data: {"priority": suggest_priority_for(data)})


@app.route("/deal_financials", methods=["POST"])
def deal_financials():
    return _run("deal_financials", reporter.deal_financials_from_dict)


@app.route("/pipeline_stats", methods=["POST"])
def pipeline_stats():
    return _run("pipeline_stats", reporter.pipeline_stats_from_dict)


@app.route("/aging", methods=["POST"])
def aging():
    return _run("aging", reporter.aging_from_dict, default_today=True)


@app.route("/advances", methods=["POST"])
def advances():
    return _run("advances", reporter.advances_from_dict)


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
