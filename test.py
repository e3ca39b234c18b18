import requests
import sys
import time

# ==========================================
# 1. 분석하고 싶은 링크 (인자로 덮어쓸 수 있음)
# ==========================================
TARGET_URL = "https://www.youtube.com/watch?v=GrlANJfluvM"

# 서버 API 주소
API_URL = "http://127.0.0.1:8000/api/analyze/link"


def print_report(result):
    report = result['report']
    detection = report['aiDetection']

    print("\n" + "█"*50)
    print("✅ 분석 완료! 결과 리포트")
    print("█"*50)

    print(f"\n[진위 판단] {result['authenticityLabel']} (AI 가능성 {detection['likelihood']}%)")
    print(f"▶ 근거: {detection['reasoning']}")
    for indicator in detection['indicators']:
        print(f"   - {indicator}")

    print("\n" + "-"*30)
    print(f"[주장 검증] {result['statusCounts']}")
    print("-"*30)
    for claim in report['claims']:
        print(f"[{claim['status']}] ({claim['confidence']}%) {claim['statement']} @ {claim['timestamp']}")
        print(f"   {claim['explanation']}")

    print("\n[출처]")
    for source in report['groundingSources']:
        print(f" - {source['title']}: {source['uri']}")


def run_test(url):
    print(f"📡 [VeriScope] 서버에 분석 요청 전송... ({url})")

    try:
        start_time = time.time()
        response = requests.post(API_URL, json={"url": url}, timeout=180)
        end_time = time.time()

        result = response.json()
        print(f"🔎 입력 종류: {result.get('contentKind')} / {result.get('fileName')}")

        if response.status_code == 200:
            print_report(result)
        else:
            print(f"❌ 분석 실패 ({response.status_code}): {result.get('error') or result.get('detail')}")

        print(f"\n⏱ 총 소요 시간: {end_time - start_time:.2f}초")

    except requests.exceptions.ConnectionError:
        print("❌ 연결 실패: 서버가 실행 중인지 확인하세요.")
        print("   (터미널에서 'uvicorn veriscope.main:app --reload' 실행 필요)")


if __name__ == "__main__":
    run_test(sys.argv[1] if len(sys.argv) > 1 else TARGET_URL)
