"""
SNF SEMI 사이트 백엔드
"""
