from app.officedesk import create_app

app = create_app()
