from flask import Flask, jsonify
import threading
import logging

from utils.data_monitor import collect_performance, format_report


def create_app(context):
    app = Flask(__name__)

    @app.route('/')
    def home():
        return "Bot is Online", 200

    @app.route('/health')
    def health():
        status = context.status()
        failing = any(d["last_error"] for d in status["datasets"].values())
        return jsonify(status), 503 if failing else 200

    @app.route('/health/data')
    def data_health():
        metrics = collect_performance(context)
        return jsonify(metrics), 503 if metrics["status"] == "Critical" else 200

    @app.route('/health/report')
    def data_report():
        metrics = collect_performance(context)
        return format_report(metrics), 200, {"Content-Type": "text/plain; charset=utf-8"}

    return app


def start_server(context, port=8080):
    """Start the health-check server on a daemon thread"""
    # Disable Flask's default logging to keep terminal clean
    logging.getLogger('werkzeug').setLevel(logging.ERROR)

    app = create_app(context)
    server_thread = threading.Thread(
        target=lambda: app.run(host='0.0.0.0', port=port, use_reloader=False),
        name="health-server",
    )
    server_thread.daemon = True
    server_thread.start()

    logging.info(f"✅ Health-check server started on port {port}")
    return server_thread
