"""HTTP routers for the Aniportal FastAPI application"""
