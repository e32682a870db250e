"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- snapshots: 일일 스냅샷 트리거 (cron, Bearer 인증)
- portfolio: 잔고/평가/순자산/히스토리 조회, 거래 잔고 검증
"""
