"""
Email authentication API

Flask front end for the record analyzers: domain normalization, captcha,
per-client rate limiting and CORS around the analysis functions.
"""

import re
from datetime import datetime, timezone
from functools import wraps

from flask import Flask, request, jsonify

from mailposture import __version__
from mailposture.analyzers import (
    EmailSecurityAnalyzer,
    analyze_dkim,
    analyze_dmarc,
    analyze_dmarc_record,
    analyze_mx,
    analyze_spf,
    lookup_dmarc,
)
from mailposture.config import load_config
from mailposture.console import log_message
from mailposture.resolver import DNSLookup
from mailposture.stores import CaptchaService, RateLimiter, TTLStore
from mailposture.verifier import AuthVerifier

ENDPOINTS = [
    'GET /health',
    'GET /v1/captcha',
    'GET /check-dmarc?domain=example.com',
    'POST /analyze-dmarc',
    'POST /analyze-dmarc-with-captcha',
    'GET /analyze-dmarc-by-domain?domain=example.com',
    'POST /api/analyze-dmarc',
    'POST /api/analyze-spf',
    'POST /api/analyze-dkim',
    'POST /api/analyze-mx',
    'POST /api/analyze-email-security',
]


def normalize_domain(domain) -> str:
    """Lower-case host part of user input: no scheme, no www., no path"""
    domain = str(domain).strip().lower()
    domain = re.sub(r'^https?://', '', domain)
    domain = re.sub(r'^www\.', '', domain)
    return domain.split('/')[0]


def create_app(config=None, lookup=None, verifier=None, store=None) -> Flask:
    """Build the Flask app; collaborators default to ones built from `config`"""
    config = config or load_config()
    app = Flask(__name__)

    lookup = lookup or DNSLookup.from_config(config)
    if verifier is None and config.get('verifier', {}).get('enabled'):
        verifier = AuthVerifier.from_config(config)
    store = store or TTLStore()

    rate_limiter = RateLimiter.from_config(config, store)
    captcha = CaptchaService.from_config(config, store)
    email_security = EmailSecurityAnalyzer.from_config(config, lookup, verifier)
    require_captcha = config.get('api', {}).get('require_captcha', False)
    default_selector = config.get('dkim', {}).get('default_selector', 'default')

    app.extensions['mailposture'] = {
        'lookup': lookup,
        'verifier': verifier,
        'store': store,
        'rate_limiter': rate_limiter,
        'captcha': captcha,
    }

    @app.after_request
    def add_cors_headers(response):
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
        return response

    def rate_limited(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            client = request.remote_addr or 'unknown'
            if not rate_limiter.allow(client):
                log_message(f"Rate limit exceeded for {client}", "WARNING")
                return jsonify({'error': 'Too many requests. Please try again later.'}), 429
            return view(*args, **kwargs)
        return wrapper

    def check_captcha(data, required=False):
        """None when the request may proceed, else an error response"""
        captcha_text = data.get('captchaText')
        captcha_probe = data.get('captchaProbe')
        if not required and not (captcha_text and captcha_probe):
            return None

        valid, error = captcha.verify(captcha_text, captcha_probe)
        if not valid:
            return jsonify({'success': False, 'error': error}), 400
        return None

    def json_body():
        """Request JSON object; missing, malformed or non-object bodies read as empty"""
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    def pasted_record_response(record, **extra):
        if not isinstance(record, str) or 'v=DMARC1' not in record:
            return jsonify({'error': 'Invalid DMARC record: must contain v=DMARC1'}), 400

        result = analyze_dmarc_record(record)
        body = result.to_dict()
        if result.success:
            body.update(extra)
        return jsonify(body), (200 if result.success else 400)

    def domain_request():
        """Parse a POST body carrying a domain; returns (data, domain, error response)"""
        data = json_body()
        if not data.get('domain'):
            return data, None, (jsonify({'success': False, 'error': 'Domain is required'}), 400)

        denied = check_captcha(data, required=require_captcha)
        if denied:
            return data, None, denied

        domain = normalize_domain(data['domain'])
        if not domain:
            return data, None, (jsonify({'success': False, 'error': 'Please enter a valid domain name'}), 400)
        return data, domain, None

    @app.route('/health', methods=['GET'])
    def health():
        """Health check endpoint"""
        return jsonify({
            'status': 'healthy',
            'service': 'Email Authentication Analyzer API',
            'version': __version__,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'endpoints': ENDPOINTS,
        })

    @app.route('/v1/captcha', methods=['GET'])
    def new_captcha():
        return jsonify({'result': captcha.create()})

    @app.route('/check-dmarc', methods=['GET'])
    def check_dmarc():
        """DMARC record lookup without analysis"""
        domain = request.args.get('domain')
        if not domain:
            return jsonify({'error': 'Missing domain parameter'}), 400
        return jsonify(lookup_dmarc(normalize_domain(domain), lookup))

    @app.route('/analyze-dmarc', methods=['POST'])
    @rate_limited
    def analyze_pasted_dmarc():
        """Analyze a DMARC record supplied in the request body"""
        data = json_body()
        record = data.get('record')
        if not record:
            return jsonify({'error': 'Missing DMARC record in request body'}), 400

        denied = check_captcha(data, required=require_captcha)
        if denied:
            return denied

        return pasted_record_response(record)

    @app.route('/analyze-dmarc-with-captcha', methods=['POST'])
    @rate_limited
    def analyze_pasted_dmarc_with_captcha():
        """Pasted record analysis behind a mandatory captcha"""
        data = json_body()
        record = data.get('record')
        if not record:
            return jsonify({'error': 'Missing DMARC record in request body'}), 400

        if not (data.get('captchaText') and data.get('captchaProbe')):
            return jsonify({'error': 'Captcha verification required'}), 400

        denied = check_captcha(data, required=True)
        if denied:
            return denied

        return pasted_record_response(record, captchaVerified=True)

    @app.route('/analyze-dmarc-by-domain', methods=['GET'])
    @rate_limited
    def analyze_dmarc_by_domain():
        domain = request.args.get('domain')
        if not domain:
            return jsonify({'error': 'Missing domain parameter'}), 400

        denied = check_captcha(request.args)
        if denied:
            return denied

        result = analyze_dmarc(normalize_domain(domain), lookup, verifier)
        if not result.success and result.error == 'DMARC record not found':
            return jsonify(result.to_dict()), 404
        return jsonify(result.to_dict())

    @app.route('/api/analyze-dmarc', methods=['POST'])
    @rate_limited
    def api_analyze_dmarc():
        """DMARC checker"""
        _, domain, error = domain_request()
        if error:
            return error
        return jsonify(analyze_dmarc(domain, lookup, verifier).to_dict())

    @app.route('/api/analyze-spf', methods=['POST'])
    @rate_limited
    def api_analyze_spf():
        """SPF checker"""
        _, domain, error = domain_request()
        if error:
            return error
        return jsonify(analyze_spf(domain, lookup, verifier).to_dict())

    @app.route('/api/analyze-dkim', methods=['POST'])
    @rate_limited
    def api_analyze_dkim():
        """DKIM checker"""
        data, domain, error = domain_request()
        if error:
            return error
        selector = data.get('selector') or default_selector
        return jsonify(analyze_dkim(domain, lookup, verifier, selector=selector).to_dict())

    @app.route('/api/analyze-mx', methods=['POST'])
    @rate_limited
    def api_analyze_mx():
        """MX checker"""
        _, domain, error = domain_request()
        if error:
            return error
        return jsonify(analyze_mx(domain, lookup).to_dict())

    @app.route('/api/analyze-email-security', methods=['POST'])
    @rate_limited
    def api_analyze_email_security():
        """Comprehensive email security check"""
        data, domain, error = domain_request()
        if error:
            return error
        selector = data.get('dkimSelector') or default_selector
        return jsonify(email_security.analyze(domain, dkim_selector=selector).to_dict())

    return app
