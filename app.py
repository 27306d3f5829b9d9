from field_attendance.main import create_app

app = create_app()


if __name__ == "__main__":
    # Long timeouts belong to the WSGI server (e.g. gunicorn --timeout 1200).
    app.run(host="0.0.0.0", port=5000)
