from fireprov.services.health_probe import HealthProbeService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code
        self.closed = False

    def close(self):
        self.closed = True


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, statuses):
        self.statuses = statuses
        self.responses = []

    def get(self, url, timeout=None):
        status = self.statuses[url]
        if status is None:
            raise self.RequestException("connection refused")
        response = FakeResponse(status)
        self.responses.append(response)
        return response


def test_probe_all_requires_http_200():
    requests_module = FakeRequestsModule(
        {
            "http://localhost:4000": 200,
            "http://localhost:3001/api/v1/health": 503,
            "http://localhost:5173": None,
        }
    )
    service = HealthProbeService(logger=DummyLogger(), requests_module=requests_module)

    results = service.probe_all(
        {
            "emulators": "http://localhost:4000",
            "api": "http://localhost:3001/api/v1/health",
            "web": "http://localhost:5173",
        }
    )

    assert results == {"emulators": True, "api": False, "web": False}
    assert all(response.closed for response in requests_module.responses)
