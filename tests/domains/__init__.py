# tests/domains/__init__.py

"""
도메인별 API 통합 테스트 패키지입니다.

- `test_usr_n.py`: 'usr' 도메인 (계정, 직원, 인증)
- `test_ctr_n.py`: 'ctr' 도메인 (서비스센터, 직원의 센터 배정 기간)
- `test_sch_n.py`: 'sch' 도메인 (시프트, 근무 일정 배정)
"""

__title__ = "AutoCare Scheduling Domain Tests"
__version__ = "0.1.0"
__all__ = []
