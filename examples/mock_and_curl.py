"""Walk through the mock transport and, if reachable, a real curl transfer."""

from __future__ import annotations

import os

from curlring import CurlTransport, Future, MockTransport, Request, Response

TARGET_URL = os.getenv("CURLRING_DEMO_URL", "https://example.com/")


def log_section(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def show(response: Response) -> None:
    if response.error is not None:
        print(f"error: {response.error}")
        return
    print(f"{response.status} {response.reason} ({response.effective_url})")
    for name, values in sorted((response.headers or {}).items()):
        print(f"  {name}: {', '.join(values)}")


def mock_walkthrough() -> None:
    log_section("Mock transport")
    transport = MockTransport(lambda request: Response(status=200, reason="OK", effective_url=request.url))
    show(transport(Request("GET", TARGET_URL)))

    deferred = MockTransport(Future(lambda: Response(status=202, reason="Accepted")))
    result = deferred(Request("GET", TARGET_URL, then=lambda response: print("then() ran")))
    print("then() has not run yet; dereferencing...")
    show(result.result())


def curl_walkthrough() -> None:
    log_section(f"Curl transport -> {TARGET_URL}")
    transport = CurlTransport(defaults={"timeout": 10, "decode_content": True})
    response = transport(Request("GET", TARGET_URL, headers={"User-Agent": "curlring-demo"}))
    show(response)
    if response.body is not None:
        print(f"  body: {len(response.body.read())} bytes")


if __name__ == "__main__":
    mock_walkthrough()
    curl_walkthrough()
