"""
Integration Tests - Provider routing and adapters over mocked HTTP.
"""
