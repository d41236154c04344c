"""
App layer: HTTP 서버 (FastAPI).

역할:
- 업로드/조회/렌더 요청 수신, 응답 직렬화
- ⚠️ 경로 안전/패키징/렌더 로직 없음 (charts, render에 위임)
"""
