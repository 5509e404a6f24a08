"""
API Integration Tests for Health, Index and Cross-cutting Behaviour
"""

import json

from api.rate_limiter import InMemoryRateLimiter


class TestHealthAPI:
    """Integration tests for health endpoints"""

    def test_root(self, client):
        """Test root endpoint lists the API"""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "running"
        assert data["endpoints"]["wordToPdf"] == "/api/convert/word-to-pdf"
        assert data["endpoints"]["crop"] == "/api/tools/image/crop-image"

    def test_api_index(self, client):
        """Test /api index"""
        response = client.get("/api")

        assert response.status_code == 200
        assert "endpoints" in response.json()

    def test_simple_health(self, client):
        """Test top-level health check"""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_api_health(self, client):
        """Test service health document"""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "doclair-converter"
        assert data["version"] == "1.0.0"
        assert data["uptime"] >= 0
        assert "timestamp" in data

    def test_libreoffice_unavailable(self, client):
        """Test LibreOffice health when only the text renderer is available"""
        response = client.get("/api/health/libreoffice")

        assert response.status_code == 503
        data = response.json()
        assert data["libreoffice"]["installed"] is False
        assert data["status"] == "unavailable"
        assert "debian" in data["installInstructions"]

    def test_stats(self, client):
        """Test process metrics"""
        response = client.get("/api/health/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["memory_usage"]["process_mb"] > 0
        assert data["threads"] >= 1
        assert data["cpu"]["count"] >= 1


class TestErrorsAndHeaders:
    """Integration tests for error bodies and response headers"""

    def test_unknown_route(self, client):
        """Test 404 uses the JSON error shape"""
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert "/api/does-not-exist" in data["error"]
        assert "timestamp" in data

    def test_security_headers(self, client):
        """Test security headers are set on every response"""
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"

    def test_cors_exposes_metadata_headers(self, client):
        """Test CORS preflight and exposed headers"""
        response = client.get("/health", headers={"Origin": "http://localhost:5173"})

        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
        exposed = response.headers["access-control-expose-headers"]
        assert "X-Processing-Time" in exposed
        assert "X-Conversion-Method" in exposed


class TestRateLimitAPI:
    """Integration tests for the per-IP rate limit"""

    def test_rate_limit_exceeded(self, client):
        """Test the third request in a window of two is rejected"""
        client.app.state.rate_limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60)
        options = {"cropOptions": json.dumps({"x": 0, "y": 0, "width": 1, "height": 1})}

        first = client.post("/api/tools/image/crop-image", data=options)
        second = client.post("/api/tools/image/crop-image", data=options)
        third = client.post("/api/tools/image/crop-image", data=options)

        assert first.status_code == 400
        assert second.status_code == 400
        assert third.status_code == 429
        assert third.json()["code"] == "RATE_LIMIT_EXCEEDED"
        assert int(third.headers["Retry-After"]) >= 1

    def test_rate_limit_per_client(self, client):
        """Test forwarded client addresses get separate windows"""
        client.app.state.rate_limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60)

        first = client.post("/api/convert/word-to-pdf", headers={"X-Forwarded-For": "10.0.0.1"})
        other = client.post("/api/convert/word-to-pdf", headers={"X-Forwarded-For": "10.0.0.2"})
        again = client.post("/api/convert/word-to-pdf", headers={"X-Forwarded-For": "10.0.0.1"})

        assert first.status_code == 400
        assert other.status_code == 400
        assert again.status_code == 429

    def test_health_not_limited(self, client):
        """Test health endpoints are exempt"""
        client.app.state.rate_limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60)

        for _ in range(3):
            assert client.get("/api/tools/image/health").status_code == 200
