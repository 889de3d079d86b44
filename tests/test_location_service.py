import asyncio

import httpx
import pytest

from app.core.exceptions import LocationServiceUnavailableError, ValidationError
from app.services.location_service import LocationService

POSTPIN_OK = [
    {
        "Status": "Success",
        "PostOffice": [
            {"Name": "Shivajinagar", "District": "Pune", "State": "Maharashtra", "Country": "India"}
        ],
    }
]

INDIA_POST_OK = {
    "records": [
        {"officename": "Raj Bhavan", "districtname": "Hyderabad", "statename": "Telangana"}
    ]
}


def make_service(handler, **kwargs):
    return LocationService(transport=httpx.MockTransport(handler), **kwargs)


def test_postpin_result_is_returned_and_cached():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json=POSTPIN_OK)

    service = make_service(handler)

    first = asyncio.run(service.get_location_by_pincode("411005"))
    second = asyncio.run(service.get_location_by_pincode("411005"))

    assert first == {
        "city": "Pune",
        "state": "Maharashtra",
        "district": "Pune",
        "country": "India",
        "pincode": "411005",
    }
    assert second == first
    assert calls == ["/pincode/411005"]
    assert service.get_cache_stats()["valid_entries"] == 1


def test_india_post_used_when_postpin_fails():
    def handler(request):
        if request.url.host == "api.postalpincode.in":
            return httpx.Response(500)
        assert request.url.params["filters[pincode]"] == "500004"
        return httpx.Response(200, json=INDIA_POST_OK)

    location = asyncio.run(make_service(handler).get_location_by_pincode("500004"))
    assert location["city"] == "Hyderabad"
    assert location["state"] == "Telangana"


def test_postpin_error_status_in_body_falls_through():
    def handler(request):
        if request.url.host == "api.postalpincode.in":
            return httpx.Response(200, json=[{"Status": "Error", "PostOffice": None}])
        return httpx.Response(200, json={"records": []})

    with pytest.raises(LocationServiceUnavailableError):
        asyncio.run(make_service(handler).get_location_by_pincode("999999"))


def test_static_fallback_when_providers_are_down():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    location = asyncio.run(make_service(handler).get_location_by_pincode("110001"))
    assert location == {
        "city": "New Delhi",
        "state": "Delhi",
        "district": "Central Delhi",
        "country": "India",
        "pincode": "110001",
    }


def test_unavailable_error_is_503():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(LocationServiceUnavailableError) as exc_info:
        asyncio.run(make_service(handler).get_location_by_pincode("123123"))

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == "LOCATION_SERVICE_UNAVAILABLE"


@pytest.mark.parametrize("pincode", ["41100", "41100a", "", " 411001"])
def test_malformed_pincode_rejected_without_lookup(pincode):
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(ValidationError):
        asyncio.run(make_service(handler).get_location_by_pincode(pincode))


def test_pincode_exists_check():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    service = make_service(handler)
    assert asyncio.run(service.validate_pincode_exists("41100")) is False
    assert asyncio.run(service.validate_pincode_exists("123123")) is True


def test_expired_entries_are_cleared():
    service = make_service(lambda request: httpx.Response(200, json=POSTPIN_OK), cache_ttl_seconds=-1)
    service.set_cached_location("411005", {"city": "Pune"})

    stats = service.get_cache_stats()
    assert stats["total_entries"] == 1
    assert stats["expired_entries"] == 1

    assert service.clear_expired_cache() == 1
    assert service.cache_size == 0
    assert service.get_cached_location("411005") is None
