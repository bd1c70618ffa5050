"""잡 핸들러 패키지 (worker.main._load_handlers가 하위 모듈을 모두 import)"""
