"""공통 유틸리티 (로깅 설정)"""
