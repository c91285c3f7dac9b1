"""命令行子命令"""
