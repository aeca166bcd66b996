#!/usr/bin/env python3
"""
Receipt Scanner - Web Interface

A Flask JSON service for extracting receipt fields and managing the
receipt store. Scanning and OCR happen on the client; uploads are text
dumps or PDFs that already carry a text layer.
"""
import atexit
import logging
import os
import shutil
import tempfile
import uuid
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Optional, Tuple

from flask import Flask, jsonify, request, send_file

from config import (
    APP_NAME, APP_VERSION, SUPPORTED_INPUT_EXTENSIONS,
    get_config, get_log_level, get_store_dir,
)
from extractor.models import ExtractionResult
from extractor.receipt_extractor import extract_receipt, extract_receipt_pages
from sources.text_source import open_text_source
from store.receipt_store import ReceiptStore, build_receipt


# =============================================================================
# Application Configuration
# =============================================================================

app = Flask(__name__)

logging.basicConfig(
    level=get_log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

UPLOAD_FOLDER = tempfile.mkdtemp(prefix='receipt_upload_')
MAX_CONTENT_LENGTH = int(get_config().get("max_upload_mb", 16)) * 1024 * 1024

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
app.config['STORE_DIR'] = str(get_store_dir())

_store: Optional[ReceiptStore] = None
_store_lock = Lock()


def get_store() -> ReceiptStore:
    """Receipt store for the configured STORE_DIR, opened on first use."""
    global _store
    with _store_lock:
        store_dir = Path(app.config['STORE_DIR'])
        if _store is None or _store.directory != store_dir:
            _store = ReceiptStore(store_dir)
        return _store


def cleanup_on_exit():
    """Remove the temporary upload directory on application exit."""
    shutil.rmtree(UPLOAD_FOLDER, ignore_errors=True)
    logger.info("Cleaned up temporary directories")


atexit.register(cleanup_on_exit)


# =============================================================================
# Helpers
# =============================================================================

def _save_upload() -> Tuple[Optional[str], Optional[Tuple]]:
    """
    Save the uploaded 'file' to the upload folder.

    Returns:
        (path, None) on success, or (None, error response) on a bad upload
    """
    file = request.files.get('file')
    if file is None:
        return None, (jsonify({'error': 'No file uploaded'}), 400)
    if file.filename == '':
        return None, (jsonify({'error': 'No file selected'}), 400)

    file_ext = os.path.splitext(file.filename)[1].lower()
    if file_ext not in SUPPORTED_INPUT_EXTENSIONS:
        return None, (jsonify({
            'error': 'Unsupported file format. Please upload TXT or PDF files.'
        }), 400)

    unique_id = str(uuid.uuid4())[:8]
    input_path = os.path.join(UPLOAD_FOLDER, f"upload_{unique_id}{file_ext}")
    file.save(input_path)
    logger.info(f"File uploaded: {file.filename} -> {os.path.basename(input_path)}")
    return input_path, None


def _remove_upload(input_path: Optional[str]) -> None:
    if input_path and os.path.exists(input_path):
        os.unlink(input_path)


def _extraction_response(result: ExtractionResult):
    if result.is_empty:
        logger.info("No date, total or currency recognized")
    return jsonify(result.to_dict())


# =============================================================================
# Routes
# =============================================================================

@app.route('/api/extract', methods=['POST'])
def extract():
    """
    Extract date, total and currency.

    Accepts an uploaded file, or JSON with either "text" (one string) or
    "pages" (a list of per-page strings).
    """
    if 'file' in request.files:
        input_path, error = _save_upload()
        if error:
            return error
        try:
            result = extract_receipt_pages(open_text_source(input_path).pages())
        except ValueError as e:
            logger.warning(f"Unreadable upload: {e}")
            return jsonify({'error': f'Could not read file: {e}'}), 400
        except Exception as e:
            logger.error(f"Error reading upload: {e}")
            return jsonify({'error': str(e)}), 500
        finally:
            _remove_upload(input_path)
        return _extraction_response(result)

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({'error': 'Expected a file upload or a JSON body'}), 400

    if 'pages' in payload:
        pages = payload['pages']
        if not isinstance(pages, list) or not all(isinstance(p, str) for p in pages):
            return jsonify({'error': '"pages" must be a list of strings'}), 400
        result = extract_receipt_pages(pages)
    elif 'text' in payload:
        text = payload['text']
        if not isinstance(text, str):
            return jsonify({'error': '"text" must be a string'}), 400
        result = extract_receipt(text)
    else:
        return jsonify({'error': 'JSON body needs "text" or "pages"'}), 400

    return _extraction_response(result)


@app.route('/api/receipts', methods=['POST'])
def create_receipt():
    """Upload a scanned receipt, extract its fields and store it."""
    input_path, error = _save_upload()
    if error:
        return error

    try:
        result = extract_receipt_pages(open_text_source(input_path).pages())

        store = get_store()
        scanned_at = datetime.now()
        file_name = store.import_document(input_path, scanned_at)
        receipt = build_receipt(result, file_name, scanned_at)
        store.add(receipt)
    except ValueError as e:
        logger.warning(f"Unreadable upload: {e}")
        return jsonify({'error': f'Could not read file: {e}'}), 400
    except Exception as e:
        logger.error(f"Error storing receipt: {e}")
        return jsonify({'error': str(e)}), 500
    finally:
        _remove_upload(input_path)

    logger.info(f"Stored receipt {receipt.id} as {file_name}")
    return jsonify({
        'receipt': receipt.to_dict(),
        'extraction': result.to_dict(),
    }), 201


@app.route('/api/receipts', methods=['GET'])
def list_receipts():
    """Return all stored receipts."""
    return jsonify([receipt.to_dict() for receipt in get_store().get_all()])


@app.route('/api/receipts/<receipt_id>', methods=['GET'])
def get_receipt(receipt_id):
    """Return one stored receipt."""
    receipt = get_store().get(receipt_id)
    if receipt is None:
        return jsonify({'error': 'Receipt not found'}), 404
    return jsonify(receipt.to_dict())


@app.route('/api/receipts/<receipt_id>', methods=['DELETE'])
def delete_receipt(receipt_id):
    """Delete a stored receipt and its document."""
    if not get_store().delete(receipt_id, remove_file=True):
        return jsonify({'error': 'Receipt not found'}), 404
    return jsonify({'deleted': receipt_id})


@app.route('/download/<receipt_id>')
def download_file(receipt_id):
    """Share the stored document of a receipt."""
    store = get_store()
    receipt = store.get(receipt_id)
    if receipt is None:
        return jsonify({'error': 'Receipt not found'}), 404

    file_path = store.file_path(receipt).resolve()
    if file_path.parent != store.directory.resolve():
        return jsonify({'error': 'Invalid filename'}), 400
    if not file_path.exists():
        return jsonify({'error': 'Document not found'}), 404

    logger.info(f"File downloaded: {receipt.file_name}")
    return send_file(
        str(file_path),
        as_attachment=True,
        download_name=receipt.file_name,
    )


@app.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'app': APP_NAME,
        'version': APP_VERSION,
        'timestamp': datetime.now().isoformat()
    })


@app.errorhandler(413)
def file_too_large(e):
    """Handle file too large error."""
    return jsonify({
        'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)} MB.'
    }), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({
        'error': 'An internal error occurred. Please try again.'
    }), 500


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'

    logger.info(f"Starting {APP_NAME} v{APP_VERSION} on port {port}")

    app.run(host='0.0.0.0', port=port, debug=debug)
