import base64
import io
import os
import socket
import sys
import traceback
import webbrowser
from threading import Timer

from flask import Flask, jsonify, render_template, request, send_file
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from aidoku_converter.config import load_settings
from aidoku_converter.pipeline import run_conversion

# --- App Initialization ---
SETTINGS = load_settings()

app = Flask(__name__, template_folder='templates')
app.config['JSON_SORT_KEYS'] = False
app.config['MAX_CONTENT_LENGTH'] = SETTINGS.max_content_length
app.secret_key = os.urandom(24)

ALLOWED_EXTENSIONS = ('.json',)


def _error(message, status=400, log=None):
    log = log or [{"level": "error", "message": f"ERROR: {message}"}]
    payload = {
        "status": "error",
        "message": message,
        "messages": [entry["message"] for entry in log],
        "log": log,
    }
    return jsonify(payload), status


def _read_upload():
    """Return ``(raw_bytes, filename, None)`` or ``(None, None, error_response)``."""
    if 'file' not in request.files:
        return None, None, _error("No files were provided! Try reuploading?")

    file = request.files['file']
    filename = secure_filename(file.filename or '')
    if not filename or not filename.lower().endswith(ALLOWED_EXTENSIONS):
        return None, None, _error("Invalid file. Please upload a Suwatte .json backup file.")

    file.stream.seek(0)
    return file.stream.read(), filename, None


def _convert_upload():
    raw, filename, error = _read_upload()
    if error is not None:
        return None, error

    app.logger.info("Converting uploaded backup %s (%d bytes)", filename, len(raw))
    outcome = run_conversion(raw)
    log = [{"level": "info", "message": f"Your old backup name is: {filename}"}]
    log.extend(entry.as_dict() for entry in outcome.log)
    if not outcome.success:
        app.logger.warning("Conversion of %s failed: %s", filename, outcome.error)
        return None, _error(str(outcome.error), 400, log)
    return (outcome, log), None


@app.errorhandler(RequestEntityTooLarge)
def upload_too_large(exc):
    return _error(f"Backup file is larger than {SETTINGS.max_upload_mb} MB.", 413)


@app.route('/')
def home():
    return render_template('index.html')


@app.route('/api/convert', methods=['POST'])
def convert():
    """Convert an uploaded Suwatte backup and return the log plus the encoded file."""
    try:
        converted, error = _convert_upload()
    except RequestEntityTooLarge:
        raise
    except Exception as exc:
        app.logger.error(f"Error converting backup: {exc}")
        app.logger.error(traceback.format_exc())
        return _error("Failed to process backup.", 500)
    if error is not None:
        return error

    outcome, log = converted
    return jsonify({
        "status": "success",
        "messages": [entry["message"] for entry in log],
        "log": log,
        "filename": outcome.filename,
        "data": base64.b64encode(outcome.data).decode('ascii'),
    }), 200


@app.route('/api/convert/download', methods=['POST'])
def convert_download():
    """Convert an uploaded Suwatte backup and send the ``.aib`` file back."""
    try:
        converted, error = _convert_upload()
    except RequestEntityTooLarge:
        raise
    except Exception as exc:
        app.logger.error(f"Error converting backup: {exc}")
        app.logger.error(traceback.format_exc())
        return _error("Failed to process backup.", 500)
    if error is not None:
        return error

    outcome, _ = converted
    return send_file(
        io.BytesIO(outcome.data),
        mimetype='application/octet-stream',
        as_attachment=True,
        download_name=outcome.filename,
    )


def open_browser():
    webbrowser.open_new(f"http://127.0.0.1:{SETTINGS.port}/")


def is_port_in_use(port):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        return s.connect_ex(('127.0.0.1', port)) == 0


def main():
    port = SETTINGS.port
    if is_port_in_use(port):
        print(f"Port {port} is already in use. Opening browser to existing instance.")
        if SETTINGS.open_browser:
            open_browser()
        sys.exit(0)
    else:
        print(f"Port {port} is free. Starting new server.")
        if SETTINGS.open_browser:
            Timer(1, open_browser).start()
        app.run(host='127.0.0.1', port=port, debug=False)


if __name__ == '__main__':
    main()
