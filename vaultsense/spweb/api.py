from flask import Flask, jsonify, request

from vaultsense.config import DEFAULTS
from vaultsense.errors import InvalidRequest, ParseError, VaultSenseError
from vaultsense.evaluator import calculate_strength
from vaultsense.exporter import records_from_export
from vaultsense.generator import generate_password
from vaultsense.health import analyze
from vaultsense.importer import check_upload, detect_and_parse, preview
from vaultsense.score import analyze_strength

app = Flask(__name__)
app.config["MAX_IMPORT_BYTES"] = DEFAULTS["max_import_bytes"]
# multipart framing on top of the largest accepted file
app.config["MAX_CONTENT_LENGTH"] = DEFAULTS["max_import_bytes"] + 64 * 1024


@app.errorhandler(VaultSenseError)
def handle_error(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(413)
def handle_too_large(e):
    return jsonify({"error": "Upload is too large"}), 413


@app.route('/')
def home():
    return jsonify({
        "message": "VaultSense API is running"
    })


@app.route('/generate', methods=['POST'])
def generate_route():
    data = request.get_json(silent=True) or {}
    try:
        length = int(data.get('length', 16))
    except (TypeError, ValueError):
        raise InvalidRequest("length must be an integer")
    password = generate_password(
        length,
        use_upper=bool(data.get('upper', True)),
        use_lower=bool(data.get('lower', True)),
        use_digits=bool(data.get('digits', True)),
        use_symbols=bool(data.get('symbols', True)),
        exclude_similar=bool(data.get('excludeSimilar', False)),
    )
    return jsonify({'password': password})


@app.route('/score', methods=['POST'])
def score_route():
    data = request.get_json(silent=True) or {}
    password = data.get('password', '')
    if not isinstance(password, str):
        raise InvalidRequest("password must be a string")
    return jsonify({
        'strength': analyze_strength(password).to_dict(),
        'breakdown': calculate_strength(password).to_dict(),
    })


@app.route('/health', methods=['POST'])
def health_route():
    report = analyze(records_from_export(request.get_data()))
    return jsonify({
        **report.summary(),
        'weakTitles': [r.title for r in report.weak_records()],
        'duplicateTitles': [r.title for r in report.duplicate_records()],
        'staleTitles': [r.title for r in report.stale_records()],
    })


@app.route('/import/preview', methods=['POST'])
def import_preview_route():
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        raise ParseError("No file uploaded")
    limit = app.config["MAX_IMPORT_BYTES"]
    check_upload(upload.filename, 0, limit)
    content = upload.read(limit + 1)
    check_upload(upload.filename, len(content), limit)
    candidates = detect_and_parse(upload.filename, content)
    return jsonify({
        'count': len(candidates),
        'candidates': [
            {**c.to_dict(), 'strength': s.score} for c, s in preview(candidates)
        ],
    })


if __name__ == "__main__":
    app.run(debug=True)
