"""
공용 인프라 모듈

로깅, 오류 처리, 결과 캐시 등 분석 패키지 전반에서 사용하는 기능을 제공합니다.
"""
