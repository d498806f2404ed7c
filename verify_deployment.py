import os
import requests
import sys

BASE_URL = os.getenv("GATEWAY_BASE_URL", "http://127.0.0.1:8000")


def test_health():
    print(f"\n⚡ Testing Health Endpoint ({BASE_URL}/health)...")
    try:
        resp = requests.get(f"{BASE_URL}/health", timeout=10)
        if resp.status_code == 200 and resp.json().get("status") == "operational":
            data = resp.json()
            print("✅ Success! Gateway operational")
            print(f"   LLM key configured: {data.get('upstream_key')}")
            return True
        else:
            print(f"❌ Failed: {resp.status_code} - {resp.text}")
            return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Exception: {e}")
        return False


def test_landing_page():
    print(f"\n⚡ Verifying chat page content...")
    try:
        resp = requests.get(f"{BASE_URL}/", timeout=10)
        if "GROCK1 AI Chat" in resp.text and "Connect MetaMask" in resp.text:
            print("✅ Success! Found connect button on chat page")
            return True
        else:
            print("❌ Failed: connect button not found on chat page")
            print(f"Snippet: {resp.text[:200]}...")
            return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Exception: {e}")
        return False


def test_proxy_rejects_empty_prompt():
    print(f"\n⚡ Verifying /api/chat input validation...")
    try:
        resp = requests.post(f"{BASE_URL}/api/chat", json={"prompt": "  "}, timeout=10)
        if resp.status_code == 400:
            print("✅ Success! Empty prompt rejected with 400")
            return True
        else:
            print(f"❌ Failed: expected 400, got {resp.status_code} - {resp.text}")
            return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Exception: {e}")
        return False


if __name__ == "__main__":
    r1 = test_health()
    r2 = test_landing_page()
    r3 = test_proxy_rejects_empty_prompt()

    if r1 and r2 and r3:
        print("\n✨ ALL SYSTEM CHECKS PASSED ✨")
        sys.exit(0)
    else:
        print("\n⚠️ SOME CHECKS FAILED")
        sys.exit(1)
