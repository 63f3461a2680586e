#!/usr/bin/env python3
"""
Script to verify a Gawin deployment is working correctly
"""

import os
import requests


def check(label, func):
    print(label)
    try:
        ok = func()
        print("   ✅ passed" if ok else "   ❌ failed")
    except requests.RequestException as e:
        print(f"   ❌ Error: {e}")
        ok = False
    print()
    return ok


def verify_deployment(base_url=None):
    BASE_URL = (base_url or os.environ.get('GAWIN_BASE_URL', 'http://localhost:5000')).rstrip('/')

    print("=== Gawin Deployment Verification ===")
    print(f"Testing: {BASE_URL}")
    print()

    def health():
        response = requests.get(f"{BASE_URL}/health", timeout=10)
        print(f"   Status: {response.status_code} {response.text.strip()}")
        return response.status_code == 200

    def version():
        response = requests.get(f"{BASE_URL}/api/version", timeout=10)
        print(f"   Status: {response.status_code}")
        if response.status_code != 200:
            return False
        print(f"   Version: {response.json().get('version')}")
        print(f"   Cache-Control: {response.headers.get('Cache-Control')}")
        return True

    def providers():
        response = requests.get(f"{BASE_URL}/api/groq", timeout=30)
        print(f"   Status: {response.status_code}")
        if response.status_code != 200:
            return False
        data = response.json().get('data', {})
        print(f"   Groq: {data.get('primary_health', {}).get('status')}")
        print(f"   Gemini: {data.get('fallback_health', {}).get('status')}")
        return True

    def preflight():
        response = requests.options(f"{BASE_URL}/api/groq",
                                    headers={'Origin': 'http://localhost:3000',
                                             'Access-Control-Request-Method': 'POST'},
                                    timeout=10)
        cors_headers = {k: v for k, v in response.headers.items() if 'access-control' in k.lower()}
        print(f"   Status: {response.status_code}")
        print(f"   CORS Headers: {cors_headers}")
        return response.status_code == 200

    def chat():
        response = requests.post(f"{BASE_URL}/api/groq",
                                 json={"messages": [{"role": "user", "content": "Hello"}]},
                                 timeout=60)
        print(f"   Status: {response.status_code}")
        if response.status_code != 200:
            print(f"   Body: {response.text[:200]}")
            return False
        print(f"   Model: {response.json().get('model')}")
        return True

    def languages():
        response = requests.get(f"{BASE_URL}/api/translate", timeout=10)
        print(f"   Status: {response.status_code}")
        return response.status_code == 200 and response.json().get('total') == 16

    results = [
        check("1. Health Check...", health),
        check("2. Version...", version),
        check("3. Provider Health...", providers),
        check("4. CORS Preflight Test...", preflight),
        check("5. Chat Round Trip...", chat),
        check("6. Translation Languages...", languages),
    ]

    print(f"=== Verification Complete: {sum(results)}/{len(results)} passed ===")
    return all(results)


if __name__ == "__main__":
    verify_deployment()
