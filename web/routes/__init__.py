"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- auth: OTP 로그인, 로그아웃, 사용자 정보
- context: 회계 컨텍스트 조회/전환
- company: 회사 조회/생성/수정
- customers: 고객 관리
- personal: 개인 수입/지출, 예산, 요약
- transactions: 사업 거래 (매출/비용)
- invoices: 송장 발행/상태 변경/삭제
- analytics: 매출 분석
- ledger: 분개 조회, 무효화, 시산표
"""
