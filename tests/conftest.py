import datetime as dt

import httpx
import pytest

from usgs_quake.api import UsgsAPI


def epoch_ms(day: str, clock: str = "12:00:00") -> int:
    moment = dt.datetime.strptime(f"{day} {clock}", "%Y-%m-%d %H:%M:%S")
    return int(moment.replace(tzinfo=dt.timezone.utc).timestamp() * 1000)


def feature(mag, place, day, *, clock="12:00:00", type_="earthquake", title=None, **extra_props):
    props = {
        "mag": mag,
        "place": place,
        "time": epoch_ms(day, clock),
        "type": type_,
        "title": title or f"M {mag} - {place}",
    }
    props.update(extra_props)
    return {"type": "Feature", "id": f"us{day}{mag}", "properties": props, "geometry": None}


def collection(*features, **extra):
    body = {"type": "FeatureCollection", "metadata": {"generated": 0}, "features": list(features)}
    body.update(extra)
    return body


@pytest.fixture
def payload():
    return collection(
        feature(3.0, "10km N of Ridgecrest, California", "2023-11-20"),
        feature(5.2, "50km S of Adak, Alaska", "2023-11-22", tsunami=0, felt=None),
        feature(None, None, "2023-11-25"),
        feature(1.0, "Ridgecrest CA", "2023-11-25", clock="23:30:00"),
    )


class FakeUsgs:
    """Programmable stand-in for the USGS endpoint behind httpx.MockTransport."""

    def __init__(self, body):
        self.body = body
        self.status = 200
        self.error = None
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status, content=self.body)
        return httpx.Response(self.status, json=self.body)


@pytest.fixture
def usgs(payload):
    return FakeUsgs(payload)


@pytest.fixture
def api(usgs):
    client = httpx.Client(transport=httpx.MockTransport(usgs))
    yield UsgsAPI(client=client)
    client.close()
