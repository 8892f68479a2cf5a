"""
YAML 설정 파일 생성 스크립트
"""

from pathlib import Path

from matka.src.utils.config import Config

# 설정 파일 경로
config_path = Path(__file__).parent.parent.parent / 'config' / 'default.yaml'


def main(path: Path = config_path) -> Path:
    """기본 설정을 YAML 파일로 저장"""
    Config().save(str(path))
    print(f"설정 파일이 생성되었습니다: {path}")
    return path


if __name__ == '__main__':
    main()
