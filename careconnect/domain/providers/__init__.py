"""Provider domain - public directory and availability"""
