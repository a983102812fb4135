"""
=============================================================================
PRICE PLAN COMPARATOR - MAIN FLASK APPLICATION
=============================================================================

REST API that stores smart meter readings and compares what those readings
would cost on each available price plan.

Endpoints:
- POST /readings/store                 Store readings sent as JSON
- POST /readings/upload                Store readings from a CSV file
- GET  /readings/read/<meter>          Raw readings for a meter
- GET  /price-plans/compare-all/<meter>          Cost on every plan
- GET  /price-plans/compare-all-per-day/<meter>  Cost per plan per weekday
- GET  /price-plans/recommend/<meter>?limit=N    Cheapest plans first
- GET  /health

Readings live in memory by default. Set USE_DYNAMODB=true to keep them in
a DynamoDB table instead.

How to run:
    python -m backend.app

Then visit: http://127.0.0.1:5000/health
=============================================================================
"""

import logging
from decimal import Decimal

# Flask - A lightweight web framework for Python
from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider

# dotenv - Load environment variables from .env file
from dotenv import load_dotenv

from backend.lib.price_plan_core.cost import CostAggregator
from backend.lib.price_plan_core.exceptions import (
    CostCalculationError,
    ReadingFormatError,
    ReadingStoreError,
)
from backend.lib.price_plan_core.generator import ReadingGenerator
from backend.lib.price_plan_core.io import parse_csv_string, parse_reading_value, parse_timestamp
from backend.lib.price_plan_core.models import PricePlanCatalog, Reading
from backend.lib.price_plan_core.settings import Settings, load_settings
from backend.lib.price_plan_core.store import AccountStore, MeterReadingStore

# This must be called before load_settings() reads any environment variables
load_dotenv()

logger = logging.getLogger(__name__)


# =============================================================================
# JSON - decimals go out as plain strings so clients never see float drift
# =============================================================================

class DecimalJSONProvider(DefaultJSONProvider):
    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            # "f" avoids exponent notation such as 6.0E+1
            return format(o, "f")
        return DefaultJSONProvider.default(o)


def _weekday_costs(costs):
    return {day.name: cost for day, cost in costs.items()}


# =============================================================================
# READING STORE SELECTION
# =============================================================================

def build_reading_store(settings: Settings):
    """
    Pick the reading store: DynamoDB when USE_DYNAMODB=true, else memory.
    The in-memory store is seeded with generated readings for every known
    account so the API has something to compare out of the box.
    """
    if settings.use_dynamodb:
        # boto3 is only imported when DynamoDB is enabled
        from backend.lib.dynamodb_service import DynamoDBReadingStore
        store = DynamoDBReadingStore(table_name=settings.dynamodb_table_name,
                                     region=settings.aws_region)
        store.create_table_if_not_exists()
        logger.info("DynamoDB reading store enabled (%s)", settings.dynamodb_table_name)
        return store

    store = MeterReadingStore()
    if settings.seed_readings:
        generator = ReadingGenerator()
        seeded = generator.generate_for_meters(settings.accounts, settings.seed_readings_per_meter)
        for meter_id, readings in seeded.items():
            store.store_readings(meter_id, readings)
        logger.info("Seeded %d meters with %d generated readings each",
                    len(seeded), settings.seed_readings_per_meter)
    return store


# =============================================================================
# FLASK APPLICATION FACTORY
# =============================================================================

def create_app(settings: Settings = None, reading_store=None,
               catalog: PricePlanCatalog = None, accounts: AccountStore = None) -> Flask:
    """
    Build the Flask app. Anything not passed in is built from settings,
    which in turn default to the environment.
    """
    settings = settings or load_settings()
    reading_store = reading_store if reading_store is not None else build_reading_store(settings)
    catalog = catalog if catalog is not None else settings.catalog()
    accounts = accounts if accounts is not None else AccountStore(settings.accounts)
    aggregator = CostAggregator(reading_store, catalog, tz=settings.timezone)

    app = Flask(__name__)
    app.json = DecimalJSONProvider(app)

    # -------------------------------------------------------------------------
    # ERROR HANDLERS
    # -------------------------------------------------------------------------

    @app.errorhandler(CostCalculationError)
    def cost_error(e):
        # The readings exist but cannot be priced (empty, or no elapsed time)
        logger.warning("Cost calculation failed: %s", e)
        return jsonify({"error": str(e)}), 422

    @app.errorhandler(ReadingStoreError)
    def store_error(e):
        logger.error("Reading store unavailable: %s", e)
        return jsonify({"error": str(e)}), 503

    def meter_not_found(meter_id):
        return jsonify({"error": f"No readings for smart meter {meter_id}"}), 404

    # -------------------------------------------------------------------------
    # READINGS
    # -------------------------------------------------------------------------

    @app.route("/readings/store", methods=["POST"])
    def store_readings():
        """
        Request Body (JSON):
            {
                "smart_meter_id": "smart-meter-0",
                "electricity_readings": [
                    {"time": "2025-11-01T00:00:00Z", "reading": 0.34}
                ]
            }
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        meter_id = data.get("smart_meter_id")
        entries = data.get("electricity_readings")

        if not isinstance(meter_id, str) or not meter_id.strip():
            return jsonify({"error": "smart_meter_id required"}), 400
        if not isinstance(entries, list) or not entries:
            return jsonify({"error": "electricity_readings must be a non-empty list"}), 400

        try:
            readings = [
                Reading(timestamp=parse_timestamp(e["time"]), value=parse_reading_value(e["reading"]))
                for e in entries
            ]
        except (KeyError, TypeError, AttributeError, ReadingFormatError) as e:
            return jsonify({"error": f"Invalid electricity reading: {e}"}), 400

        reading_store.store_readings(meter_id, readings)
        return jsonify({})

    @app.route("/readings/upload", methods=["POST"])
    def upload():
        """
        Expected CSV format:
            meter_id,timestamp,reading
            smart-meter-0,2025-11-01T00:00:00Z,0.34
        """
        if "file" not in request.files:
            return jsonify({"error": "No file uploaded"}), 400

        file = request.files["file"]
        try:
            by_meter = parse_csv_string(file.read().decode("utf-8"))
        except (UnicodeDecodeError, ReadingFormatError) as e:
            return jsonify({"error": str(e)}), 400

        processed = 0
        for meter_id, readings in by_meter.items():
            processed += reading_store.store_readings(meter_id, readings)

        return jsonify({
            "upload_id": file.filename,
            "processed_count": processed,
            "meters": sorted(by_meter),
        }), 202

    @app.route("/readings/read/<meter_id>", methods=["GET"])
    def read_readings(meter_id):
        readings = reading_store.get_readings(meter_id)
        if readings is None:
            return meter_not_found(meter_id)
        return jsonify([
            {"time": r.timestamp.isoformat(), "reading": r.value} for r in readings
        ])

    # -------------------------------------------------------------------------
    # PRICE PLANS
    # -------------------------------------------------------------------------

    @app.route("/price-plans/compare-all/<meter_id>", methods=["GET"])
    def compare_all(meter_id):
        """
        Example Response:
            {
                "price_plan_id": "price-plan-0",
                "price_plan_comparisons": {"price-plan-0": "5.0", ...}
            }
        """
        costs = aggregator.get_cost_per_plan(meter_id)
        if costs is None:
            return meter_not_found(meter_id)
        return jsonify({
            "price_plan_id": accounts.plan_for_meter(meter_id),
            "price_plan_comparisons": costs,
        })

    @app.route("/price-plans/compare-all-per-day/<meter_id>", methods=["GET"])
    def compare_all_per_day(meter_id):
        costs = aggregator.get_cost_per_plan_per_day(meter_id)
        if costs is None:
            return meter_not_found(meter_id)
        return jsonify({plan: _weekday_costs(days) for plan, days in costs.items()})

    @app.route("/price-plans/recommend/<meter_id>", methods=["GET"])
    def recommend(meter_id):
        """
        Query Parameters:
            limit (optional): how many of the cheapest plans to return
        """
        limit = request.args.get("limit")
        if limit is not None:
            try:
                limit = int(limit)
            except ValueError:
                return jsonify({"error": "limit must be an integer"}), 400
            if limit < 0:
                return jsonify({"error": "limit must not be negative"}), 400

        ranked = aggregator.recommend(meter_id, limit)
        if ranked is None:
            return meter_not_found(meter_id)
        return jsonify([{plan: cost} for plan, cost in ranked])

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            "status": "ok",
            "reading_store": "dynamodb" if settings.use_dynamodb else "memory",
        })

    return app


# =============================================================================
# RUN THE SERVER
# =============================================================================

if __name__ == "__main__":
    _settings = load_settings()
    logging.basicConfig(level=_settings.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # debug=True enables auto-reload; never use it in production
    create_app(_settings).run(debug=True)
