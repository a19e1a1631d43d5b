"""Files a brand-new project starts with."""

INDEX_JS = """\
// Main application entry point
import express from 'express';
import cors from 'cors';
import helmet from 'helmet';

const app = express();
const PORT = process.env.PORT || 3000;

// Middleware configuration
app.use(helmet());
app.use(cors());
app.use(express.json());

// Routes
app.get('/', (req, res) => {
  res.json({ message: 'Hello World!' });
});

// Start server
app.listen(PORT, () => {
  console.log(`Server running on port ${PORT}`);
});"""

APP_JS = """\
// Application configuration
export default class App {
  constructor() {
    this.init();
  }

  init() {
    console.log('App initialized');
  }
}"""

STYLES_CSS = """\
/* Global styles */
body {
  font-family: Arial, sans-serif;
  margin: 0;
  padding: 0;
  background-color: #f5f5f5;
}

.container {
  max-width: 1200px;
  margin: 0 auto;
  padding: 20px;
}"""

INDEX_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>My Web Project</title>
    <link rel="stylesheet" href="src/styles.css">
</head>
<body>
    <div class="container">
        <h1>Welcome to My Web Project</h1>
        <p>This is a sample HTML file.</p>
    </div>
    <script src="src/index.js"></script>
</body>
</html>"""

PACKAGE_JSON = """\
{
  "name": "my-web-project",
  "version": "1.0.0",
  "description": "A sample web project",
  "main": "src/index.js",
  "scripts": {
    "start": "node src/index.js",
    "dev": "nodemon src/index.js"
  },
  "dependencies": {
    "express": "^4.18.2",
    "cors": "^2.8.5",
    "helmet": "^6.1.5"
  },
  "devDependencies": {
    "nodemon": "^2.0.20"
  }
}"""

README_MD = """\
# My Web Project

A sample web development project.

## Getting Started

1. Install dependencies:
   ```
   npm install
   ```

2. Start the development server:
   ```
   npm run dev
   ```

3. Open your browser and navigate to `http://localhost:3000`

## Project Structure

- `src/` - Source code files
- `public/` - Static assets
- `components/` - Reusable components
"""

# Parents are listed before their children.
DEFAULT_PROJECT = [
    {'path': '/src', 'is_directory': True},
    {'path': '/src/index.js', 'content': INDEX_JS},
    {'path': '/src/app.js', 'content': APP_JS},
    {'path': '/src/styles.css', 'content': STYLES_CSS},
    {'path': '/components', 'is_directory': True},
    {'path': '/public', 'is_directory': True},
    {'path': '/index.html', 'content': INDEX_HTML},
    {'path': '/package.json', 'content': PACKAGE_JSON},
    {'path': '/README.md', 'content': README_MD},
]
