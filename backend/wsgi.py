from zenith import create_app


app = create_app()
