"""酒店运营管理后台"""
